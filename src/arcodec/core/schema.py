#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
ar 格式定义

定义全局魔法数、条目头布局、长文件名标记等常量，
以及 60 字节定长条目头 EntryHeader 的编解码。
"""

import re
import struct
from dataclasses import dataclass
from typing import ClassVar, Tuple

from ..exceptions import (
    MalformedArchiveError,
    TruncatedArchiveError,
    ConstraintViolationError,
)


# ==================== 常量定义 ====================

# 全局魔法数 "!<arch>\n"
GLOBAL_MAGIC = b'!<arch>\n'

# 条目头尾标 "`\n" (八进制 \140\012)
ENTRY_TRAILER = b'`\n'

# 名称编码 (兼容 ASCII，长度按编码后的字节计算)
ENCODING = 'utf-8'

# 条目按 2 字节对齐，填充字节为换行符
ALIGNMENT = 2
PAD_BYTE = b'\n'

# 默认文件权限 (八进制 100644)
DEFAULT_MODE = 0o100644

# 条目头字段: (字段名, 宽度)，顺序即存储顺序
HEADER_FIELDS: Tuple[Tuple[str, int], ...] = (
    ('name', 16),
    ('last_modified', 12),
    ('user_id', 6),
    ('group_id', 6),
    ('mode', 8),
    ('size', 10),
)

NAME_FIELD_WIDTH = 16

# GNU/SVR4 长文件名: "//" 条目保存扩展名表，"/<偏移>" 引用表内名称
GNU_STRING_TABLE_NAME = '//'
GNU_NAME_TERMINATOR = '/'
GNU_LONGNAME_PATTERN = re.compile(r'/([0-9]+)')
# GNU 短名需要为结尾的 "/" 预留 1 字节
GNU_SHORT_NAME_MAX = NAME_FIELD_WIDTH - 1
NAME_TABLE_TERMINATOR = b'\n'

# BSD 长文件名: "#1/<长度>"，名称紧跟在条目头之后
BSD_LONGNAME_PREFIX = '#1/'
BSD_LONGNAME_PATTERN = re.compile(r'#1/([0-9]+)')

_DECIMAL_PATTERN = re.compile(r'[0-9]+')
_OCTAL_PATTERN = re.compile(r'[0-7]+')


# ==================== 字段编解码 ====================

def parse_number(field: str, raw: bytes, base: int = 10,
                 blank_as_zero: bool = False) -> int:
    """
    解析数值字段

    去掉首尾空白后按 base 解析。只有 blank_as_zero=True 的字段
    (uid/gid) 允许为空并视为 0，其余字段为空即视为格式错误。

    Raises:
        MalformedArchiveError: 字段为空或包含非数字字符
    """
    try:
        text = raw.decode('ascii').strip()
    except UnicodeDecodeError:
        raise MalformedArchiveError(f"数值字段 {field} 含有非 ASCII 字节: {raw!r}")

    if not text:
        if blank_as_zero:
            return 0
        raise MalformedArchiveError(f"数值字段 {field} 为空")

    pattern = _OCTAL_PATTERN if base == 8 else _DECIMAL_PATTERN
    if not pattern.fullmatch(text):
        raise MalformedArchiveError(
            f"无效的数值字段 {field}",
            expected="八进制数字" if base == 8 else "十进制数字",
            actual=repr(text)
        )
    return int(text, base)


def format_field(field: str, text: str, width: int) -> bytes:
    """
    编码定长字段 (左对齐，空格填充)

    Raises:
        ConstraintViolationError: 编码后超出字段宽度
    """
    data = text.encode(ENCODING)
    if len(data) > width:
        raise ConstraintViolationError(field, text, width)
    return data.ljust(width, b' ')


# ==================== 条目头 ====================

@dataclass
class EntryHeader:
    """
    条目头 (60 bytes)

    所有字段为 ASCII 文本，左对齐、空格填充，字段之间没有分隔符:
    name(16) mtime(12) uid(6) gid(6) mode(8, 八进制) size(10) trailer(2)

    name 保存字段中的原始名称 (可能是 "//"、"/<偏移>" 或 "#1/<长度>" 标记)，
    长文件名的解析由读取器完成。size 为字段中声明的大小，BSD 长文件名
    时包含内联名称的长度。
    """
    FORMAT: ClassVar[str] = '16s12s6s6s8s10s2s'
    SIZE: ClassVar[int] = 60

    name: str = ''
    last_modified: int = 0
    user_id: int = 0
    group_id: int = 0
    mode: int = DEFAULT_MODE
    size: int = 0

    def pack(self) -> bytes:
        """
        序列化为字节

        Raises:
            ConstraintViolationError: 任一字段超出其固定宽度
        """
        widths = dict(HEADER_FIELDS)
        return struct.pack(
            self.FORMAT,
            format_field('name', self.name, widths['name']),
            format_field('last_modified', str(self.last_modified), widths['last_modified']),
            format_field('user_id', str(self.user_id), widths['user_id']),
            format_field('group_id', str(self.group_id), widths['group_id']),
            format_field('mode', format(self.mode, 'o'), widths['mode']),
            format_field('size', str(self.size), widths['size']),
            ENTRY_TRAILER
        )

    @classmethod
    def unpack(cls, data: bytes) -> 'EntryHeader':
        """
        从字节反序列化

        Raises:
            TruncatedArchiveError: 数据不足 60 字节
            MalformedArchiveError: 尾标不匹配或字段无法解析
        """
        if len(data) != cls.SIZE:
            raise TruncatedArchiveError("条目头不完整", expected=cls.SIZE, actual=len(data))

        raw_name, raw_mtime, raw_uid, raw_gid, raw_mode, raw_size, trailer = \
            struct.unpack(cls.FORMAT, data)

        if trailer != ENTRY_TRAILER:
            raise MalformedArchiveError(
                "无效的条目尾标",
                expected=repr(ENTRY_TRAILER),
                actual=repr(trailer)
            )

        try:
            name = raw_name.decode(ENCODING).strip()
        except UnicodeDecodeError:
            raise MalformedArchiveError(f"无法解码的条目名称: {raw_name!r}")

        # GNU ar 写 "//" 条目头时只填 size，其余字段留空
        if is_gnu_string_table(name):
            return cls(
                name=name,
                last_modified=0,
                user_id=parse_number('user_id', raw_uid, blank_as_zero=True),
                group_id=parse_number('group_id', raw_gid, blank_as_zero=True),
                mode=0,
                size=parse_number('size', raw_size)
            )

        return cls(
            name=name,
            last_modified=parse_number('last_modified', raw_mtime),
            user_id=parse_number('user_id', raw_uid, blank_as_zero=True),
            group_id=parse_number('group_id', raw_gid, blank_as_zero=True),
            mode=parse_number('mode', raw_mode, base=8),
            size=parse_number('size', raw_size)
        )


def pack_string_table_header(size: int) -> bytes:
    """
    GNU 扩展名表条目头

    与 GNU ar 一致，只填写名称 "//" 和 size，其余字段为空格。
    """
    widths = dict(HEADER_FIELDS)
    blank = sum(widths[f] for f in ('last_modified', 'user_id', 'group_id', 'mode'))
    return (
        format_field('name', GNU_STRING_TABLE_NAME, widths['name'])
        + b' ' * blank
        + format_field('size', str(size), widths['size'])
        + ENTRY_TRAILER
    )


def is_gnu_string_table(name: str) -> bool:
    """是否为 GNU 扩展名表条目 ("//")"""
    return name == GNU_STRING_TABLE_NAME


def is_gnu_long_name(name: str) -> bool:
    """是否为 GNU 长文件名引用 ("/" + 十进制偏移)"""
    return GNU_LONGNAME_PATTERN.fullmatch(name) is not None


def is_bsd_long_name(name: str) -> bool:
    """是否为 BSD 长文件名标记 ("#1/" + 十进制长度)"""
    return BSD_LONGNAME_PATTERN.fullmatch(name) is not None
