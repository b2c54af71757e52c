#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Core Schema 模块测试

测试 ar 格式常量与 60 字节条目头的编解码。
"""

import pytest

from arcodec.core.schema import (
    EntryHeader,
    GLOBAL_MAGIC,
    ENTRY_TRAILER,
    HEADER_FIELDS,
    DEFAULT_MODE,
    parse_number,
    format_field,
    pack_string_table_header,
    is_gnu_string_table,
    is_gnu_long_name,
    is_bsd_long_name,
)
from arcodec.exceptions import (
    MalformedArchiveError,
    TruncatedArchiveError,
    ConstraintViolationError,
)


# ==================== 常量测试 ====================

class TestConstants:
    """格式常量测试"""

    def test_magic(self):
        """全局魔法数"""
        assert GLOBAL_MAGIC == b"!<arch>\n"
        assert len(GLOBAL_MAGIC) == 8

    def test_trailer(self):
        """条目尾标为反引号 + 换行 (\\140\\012)"""
        assert ENTRY_TRAILER == b"\140\012"

    def test_field_widths(self):
        """字段宽度之和加尾标为 60"""
        assert [w for _, w in HEADER_FIELDS] == [16, 12, 6, 6, 8, 10]
        assert sum(w for _, w in HEADER_FIELDS) + len(ENTRY_TRAILER) == EntryHeader.SIZE == 60

    def test_default_mode(self):
        """默认权限 0100644"""
        assert DEFAULT_MODE == 0o100644 == 33188


# ==================== EntryHeader 测试 ====================

class TestEntryHeaderPack:
    """EntryHeader 序列化测试"""

    def test_exact_layout(self, raw_header):
        """与手工拼接的头部逐字节一致"""
        header = EntryHeader(
            name="hello.txt", last_modified=1234567890,
            user_id=1000, group_id=100, mode=0o100644, size=5
        )
        assert header.pack() == raw_header("hello.txt", 5, 1234567890, 1000, 100)

    def test_field_offsets(self):
        """各字段位于固定偏移"""
        packed = EntryHeader(
            name="x", last_modified=7, user_id=1, group_id=2, mode=0o644, size=9
        ).pack()

        assert packed[0:16] == b"x" + b" " * 15
        assert packed[16:28].rstrip() == b"7"
        assert packed[28:34].rstrip() == b"1"
        assert packed[34:40].rstrip() == b"2"
        assert packed[40:48].rstrip() == b"644"
        assert packed[48:58].rstrip() == b"9"
        assert packed[58:60] == b"`\n"

    @pytest.mark.parametrize("field,kwargs", [
        ("name", {"name": "a" * 17}),
        ("last_modified", {"last_modified": 10 ** 12}),
        ("user_id", {"user_id": 10 ** 6}),
        ("group_id", {"group_id": 10 ** 6}),
        ("mode", {"mode": 0o777777777}),
        ("size", {"size": 10 ** 10}),
    ])
    def test_overflow_raises(self, field, kwargs):
        """超出字段宽度时报错而不是截断"""
        with pytest.raises(ConstraintViolationError) as exc_info:
            EntryHeader(**kwargs).pack()
        assert exc_info.value.field == field

    def test_max_widths_fit(self):
        """恰好填满字段宽度"""
        packed = EntryHeader(
            name="a" * 16, last_modified=10 ** 12 - 1,
            user_id=999999, group_id=999999,
            mode=0o77777777, size=10 ** 10 - 1
        ).pack()
        assert len(packed) == 60


class TestEntryHeaderUnpack:
    """EntryHeader 反序列化测试"""

    def test_unpack(self, raw_header):
        """解析各字段"""
        header = EntryHeader.unpack(raw_header("lib.o/", 1234, 99, 5, 6, 0o100755))

        assert header.name == "lib.o/"
        assert header.size == 1234
        assert header.last_modified == 99
        assert header.user_id == 5
        assert header.group_id == 6
        assert header.mode == 0o100755

    def test_blank_ids_are_zero(self, raw_header):
        """uid/gid 为空时视为 0"""
        header = EntryHeader.unpack(raw_header("a", 1, uid="", gid=""))
        assert header.user_id == 0
        assert header.group_id == 0

    @pytest.mark.parametrize("kwargs", [
        {"mtime": ""},
        {"mode": ""},
        {"size": ""},
    ])
    def test_blank_other_fields_rejected(self, raw_header, kwargs):
        """mtime/mode/size 为空不视为 0"""
        values = {"name": "a", "size": 1}
        values.update(kwargs)
        with pytest.raises(MalformedArchiveError):
            EntryHeader.unpack(raw_header(**values))

    def test_string_table_header_allows_blank_fields(self, raw_header):
        """GNU "//" 条目头只需 size"""
        header = EntryHeader.unpack(
            raw_header("//", 42, mtime="", uid="", gid="", mode="")
        )
        assert header.name == "//"
        assert header.size == 42

    def test_bad_trailer(self, raw_header):
        """尾标不匹配"""
        data = raw_header("a", 1)[:-2] + b"XX"
        with pytest.raises(MalformedArchiveError):
            EntryHeader.unpack(data)

    def test_short_data(self, raw_header):
        """数据不足 60 字节"""
        with pytest.raises(TruncatedArchiveError):
            EntryHeader.unpack(raw_header("a", 1)[:59])

    def test_non_digit_size(self, raw_header):
        """size 含非数字字符"""
        with pytest.raises(MalformedArchiveError):
            EntryHeader.unpack(raw_header("a", "12x"))

    def test_non_octal_mode(self, raw_header):
        """mode 含 8/9"""
        with pytest.raises(MalformedArchiveError):
            EntryHeader.unpack(raw_header("a", 1, mode="100648"))

    def test_name_is_trimmed(self, raw_header):
        """名称去掉填充空格"""
        header = EntryHeader.unpack(raw_header("  spaced", 1))
        assert header.name == "spaced"


# ==================== 字段函数测试 ====================

class TestFieldHelpers:
    """parse_number / format_field 测试"""

    @pytest.mark.parametrize("raw,base,expected", [
        (b"123       ", 10, 123),
        (b"   42", 10, 42),
        (b"100644  ", 8, 0o100644),
        (b"0", 10, 0),
    ])
    def test_parse_number(self, raw, base, expected):
        """去空白后解析"""
        assert parse_number("f", raw, base) == expected

    def test_parse_negative_rejected(self):
        """负数不是合法的字段值"""
        with pytest.raises(MalformedArchiveError):
            parse_number("size", b"-5")

    def test_format_field_pads(self):
        """左对齐空格填充"""
        assert format_field("uid", "12", 6) == b"12    "

    def test_string_table_header(self):
        """"//" 条目头只填写名称与 size"""
        packed = pack_string_table_header(36)
        assert len(packed) == 60
        assert packed[0:16] == b"//" + b" " * 14
        assert packed[16:48] == b" " * 32
        assert packed[48:58] == b"36        "
        assert packed[58:60] == b"`\n"


class TestNamePatterns:
    """长文件名标记识别"""

    @pytest.mark.parametrize("name,gnu_table,gnu_long,bsd_long", [
        ("//", True, False, False),
        ("/0", False, True, False),
        ("/123", False, True, False),
        ("/", False, False, False),
        ("/12a", False, False, False),
        ("#1/20", False, False, True),
        ("#1/", False, False, False),
        ("#1/2x", False, False, False),
        ("plain.o", False, False, False),
    ])
    def test_patterns(self, name, gnu_table, gnu_long, bsd_long):
        """标记匹配整个名称"""
        assert is_gnu_string_table(name) is gnu_table
        assert is_gnu_long_name(name) is gnu_long
        assert is_bsd_long_name(name) is bsd_long
