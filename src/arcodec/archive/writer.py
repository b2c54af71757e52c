#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
ar 归档写入器

按 "put_entry / write / close_entry" 的顺序逐个写入条目，最后 finish。
只追加写入，不要求底层流支持 seek。
"""

import logging
import shutil
from enum import Enum
from typing import BinaryIO, Iterable, Optional, Tuple, Union

from ..core.binary_io import BinaryWriter
from ..core.entry import ArEntry
from ..core.schema import (
    EntryHeader,
    GLOBAL_MAGIC,
    ALIGNMENT,
    PAD_BYTE,
    ENCODING,
    NAME_FIELD_WIDTH,
    GNU_NAME_TERMINATOR,
    GNU_SHORT_NAME_MAX,
    BSD_LONGNAME_PREFIX,
    is_gnu_string_table,
    is_gnu_long_name,
    is_bsd_long_name,
    pack_string_table_header,
)
from ..core.string_table import NameTable
from ..exceptions import ProtocolMisuseError, ConstraintViolationError

logger = logging.getLogger(__name__)


class LongNameMode(Enum):
    """长文件名策略"""
    ERROR = "error"   # 拒绝超过 16 字节或无法放入定长字段的名称
    BSD = "bsd"       # "#1/<长度>" 标记，名称内联在条目头之后
    GNU = "gnu"       # "/<偏移>" 引用预先写入的 "//" 扩展名表


def _is_plain_name(name: str) -> bool:
    """名称原样写入名称字段后，读取时能否得到相同的名称"""
    return (
        name == name.strip()
        and not name.endswith(GNU_NAME_TERMINATOR)
        and not is_gnu_long_name(name)
        and not is_bsd_long_name(name)
    )


class ArchiveWriter:
    """
    ar 归档写入器

    典型用法:

        >>> with ArchiveWriter(open('out.a', 'wb')) as writer:
        ...     writer.put_entry(ArEntry('hello.txt', 5))
        ...     writer.write(b'world')
        ...     writer.close_entry()

    写入器独占底层流，close() 时先完成 finish 再关闭它。非线程安全。
    """

    def __init__(
        self,
        stream: BinaryIO,
        long_name_mode: Union[LongNameMode, str] = LongNameMode.ERROR
    ):
        """
        初始化写入器

        Args:
            stream: 可写的二进制流 (只需支持 write/close)
            long_name_mode: 长文件名策略

        Raises:
            ValueError: 未知的长文件名策略
        """
        self._writer = BinaryWriter(stream)
        self._long_name_mode = LongNameMode(long_name_mode)

        # 内部状态
        self._magic_written = False
        self._prev_entry: Optional[ArEntry] = None
        self._entry_open = False
        self._entry_written = 0
        self._entry_count = 0
        self._name_table: Optional[NameTable] = None
        self._finished = False
        self._closed = False

    @property
    def long_name_mode(self) -> LongNameMode:
        return self._long_name_mode

    @long_name_mode.setter
    def long_name_mode(self, mode: Union[LongNameMode, str]) -> None:
        self._long_name_mode = LongNameMode(mode)

    # ==================== 状态机 ====================

    def put_entry(self, entry: ArEntry) -> None:
        """
        打开一个新条目并写入条目头

        第一次调用时先写入全局魔法数。如果上一个条目尚未关闭，
        会先检查其长度并自动关闭。

        Raises:
            ProtocolMisuseError: 已 finish/close，或上一个条目长度不匹配
            ConstraintViolationError: 元数据超出定长字段
        """
        self._check_writable()

        if self._entry_open:
            self.close_entry()

        # 先编码再写入，编码失败时不产生任何输出
        header, inline_name = self._encode_header(entry)

        if not self._magic_written:
            self._write_global_header()

        self._writer.write_bytes(header)
        if inline_name:
            self._writer.write_bytes(inline_name)

        self._prev_entry = entry
        self._entry_open = True
        self._entry_written = 0
        self._entry_count += 1
        logger.debug("打开条目: %r (%d 字节)", entry.name, entry.length)

    def write(self, data: bytes) -> int:
        """
        写入当前条目的负载

        长度只在关闭条目或打开下一个条目时检查。

        Returns:
            写入的字节数

        Raises:
            ProtocolMisuseError: 没有打开的条目
        """
        self._check_writable()
        if not self._entry_open:
            raise ProtocolMisuseError("没有打开的条目，无法写入数据")

        written = self._writer.write_bytes(data)
        self._entry_written += written
        return written

    def close_entry(self) -> None:
        """
        关闭当前条目

        如果归档已写入的总字节数为奇数，补一个填充字节。

        Raises:
            ProtocolMisuseError: 没有打开的条目，或写入长度与声明不符
        """
        self._check_writable()
        if self._prev_entry is None or not self._entry_open:
            raise ProtocolMisuseError("没有需要关闭的条目")

        if self._entry_written != self._prev_entry.length:
            raise ProtocolMisuseError(
                f"条目 {self._prev_entry.name!r} 长度不匹配: "
                f"声明 {self._prev_entry.length} 字节, 实际写入 {self._entry_written} 字节"
            )

        padded = self._writer.align(ALIGNMENT, PAD_BYTE)
        self._entry_open = False
        logger.debug("关闭条目: %r (填充 %d 字节)", self._prev_entry.name, padded)

    def finish(self) -> None:
        """
        结束归档

        没有写入任何条目时也会写出全局魔法数，得到一个合法的空归档。

        Raises:
            ProtocolMisuseError: 存在未关闭的条目、重复 finish 或已关闭
        """
        if self._closed:
            raise ProtocolMisuseError("写入器已关闭")
        if self._entry_open:
            raise ProtocolMisuseError("归档中存在未关闭的条目")
        if self._finished:
            raise ProtocolMisuseError("归档已经 finish")

        if not self._magic_written:
            self._write_global_header()

        self._finished = True
        self._writer.flush()
        logger.debug("归档完成: %d 个条目, %d 字节", self._entry_count, self._writer.position)

    def close(self) -> None:
        """
        完成 finish (如果需要) 并关闭底层流

        可重复调用。finish 失败时仍会关闭底层流，然后抛出异常。
        """
        if self._closed:
            return
        try:
            if not self._finished:
                self.finish()
        finally:
            self._release()

    def _release(self) -> None:
        if not self._closed:
            self._closed = True
            self._writer.close()

    def _check_writable(self) -> None:
        if self._closed:
            raise ProtocolMisuseError("写入器已关闭")
        if self._finished:
            raise ProtocolMisuseError("归档已经 finish")

    def _write_global_header(self) -> None:
        self._writer.write_bytes(GLOBAL_MAGIC)
        self._magic_written = True

    # ==================== 条目头编码 ====================

    def _encode_header(self, entry: ArEntry) -> Tuple[bytes, bytes]:
        """
        编码条目头

        Returns:
            (60 字节条目头, 内联名称)，非 BSD 长文件名时内联名称为 b''
        """
        name_field, inline_name = self._encode_name(entry.name)
        header = EntryHeader(
            name=name_field,
            last_modified=entry.last_modified,
            user_id=entry.user_id,
            group_id=entry.group_id,
            mode=entry.mode,
            size=entry.length + len(inline_name)
        )
        return header.pack(), inline_name

    def _encode_name(self, name: str) -> Tuple[str, bytes]:
        """按长文件名策略决定名称字段内容"""
        if '\n' in name:
            raise ConstraintViolationError(
                'name', name, NAME_FIELD_WIDTH,
                message=f"文件名不能包含换行符: {name!r}"
            )

        raw = name.encode(ENCODING)
        mode = self._long_name_mode

        if mode is LongNameMode.BSD:
            if len(raw) > NAME_FIELD_WIDTH or ' ' in name or not _is_plain_name(name):
                return f"{BSD_LONGNAME_PREFIX}{len(raw)}", raw
            return name, b''

        if mode is LongNameMode.GNU:
            short_field = name + GNU_NAME_TERMINATOR
            # "/" 加上结尾的 "/" 会变成扩展名表标记 "//"，只能通过表引用
            if (len(raw) <= GNU_SHORT_NAME_MAX and name == name.strip()
                    and not is_gnu_string_table(short_field)):
                return short_field, b''
            if self._name_table is None or name not in self._name_table:
                raise ConstraintViolationError(
                    'name', name, GNU_SHORT_NAME_MAX,
                    message=f"GNU 长文件名未在扩展名表中声明: {name!r}"
                )
            return f"/{self._name_table.offset_of(name)}", b''

        if len(raw) > NAME_FIELD_WIDTH:
            raise ConstraintViolationError(
                'name', name, NAME_FIELD_WIDTH,
                message=f"文件名过长 (> {NAME_FIELD_WIDTH} 字节): {name!r}"
            )
        if not _is_plain_name(name):
            raise ConstraintViolationError(
                'name', name, NAME_FIELD_WIDTH,
                message=f"文件名无法原样存入名称字段: {name!r}"
            )
        return name, b''

    # ==================== GNU 扩展名表 ====================

    def write_name_table(self, names: Iterable[str]) -> NameTable:
        """
        写入 GNU 扩展名表 ("//" 条目)

        仅 GNU 模式可用，且必须在第一个条目之前调用一次。
        之后写入的长文件名必须出现在 names 中。

        Args:
            names: 需要通过扩展名表引用的长文件名

        Returns:
            写入的 NameTable

        Raises:
            ProtocolMisuseError: 非 GNU 模式、重复写入或已有条目
            ConstraintViolationError: 名称包含换行符
        """
        self._check_writable()
        if self._long_name_mode is not LongNameMode.GNU:
            raise ProtocolMisuseError("只有 GNU 模式可以写入扩展名表")
        if self._name_table is not None:
            raise ProtocolMisuseError("扩展名表已经写入")
        if self._prev_entry is not None:
            raise ProtocolMisuseError("扩展名表必须在第一个条目之前写入")

        try:
            table = NameTable.from_names(names)
        except ValueError as e:
            raise ConstraintViolationError('name', None, message=str(e)) from e

        header = pack_string_table_header(len(table))

        if not self._magic_written:
            self._write_global_header()

        self._writer.write_bytes(header)
        self._writer.write_bytes(table.pack())
        self._writer.align(ALIGNMENT, PAD_BYTE)
        self._name_table = table
        logger.debug("写入 GNU 扩展名表: %d 个名称, %d 字节", len(table.names), len(table))
        return table

    # ==================== 便捷方法 ====================

    def create_entry(self, local_path: str, name: Optional[str] = None) -> ArEntry:
        """
        根据本地文件创建条目描述

        Raises:
            ProtocolMisuseError: 归档已 finish
        """
        self._check_writable()
        return ArEntry.from_path(local_path, name)

    def add_bytes(self, entry: Union[ArEntry, str], data: bytes) -> ArEntry:
        """
        写入一个完整条目

        Args:
            entry: 条目描述，或条目名称 (其余元数据使用默认值)
            data: 负载

        Returns:
            写入的条目
        """
        if isinstance(entry, str):
            entry = ArEntry(entry, len(data))
        self.put_entry(entry)
        self.write(data)
        self.close_entry()
        return entry

    def add_file(self, local_path: str, name: Optional[str] = None) -> ArEntry:
        """
        添加本地文件

        Args:
            local_path: 本地文件路径
            name: 条目名称 (默认使用文件名)

        Returns:
            写入的条目

        Raises:
            FileNotFoundError: 文件不存在
            ProtocolMisuseError: 写入期间文件大小发生变化
        """
        entry = self.create_entry(local_path, name)
        self.put_entry(entry)
        with open(local_path, 'rb') as f:
            shutil.copyfileobj(f, self)
        self.close_entry()
        return entry

    # ==================== 状态 ====================

    @property
    def bytes_written(self) -> int:
        """从流开始写入的字节数"""
        return self._writer.position

    @property
    def entry_count(self) -> int:
        """已打开过的条目数量"""
        return self._entry_count

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> 'ArchiveWriter':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.close()
        else:
            self._release()
