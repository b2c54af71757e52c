#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pytest 全局配置

提供共享 fixtures 和测试工具。
"""

import io

import pytest

from arcodec import ArchiveWriter, ArEntry, GLOBAL_MAGIC


# ==================== 测试用流 ====================

class TrickleStream(io.RawIOBase):
    """
    不可定位、每次最多返回 chunk 字节的只读流

    模拟管道/socket，用于验证读取器只向前读取且能处理短读。
    """

    def __init__(self, data: bytes, chunk: int = 3):
        super().__init__()
        self._data = data
        self._pos = 0
        self._chunk = chunk
        self.read_calls = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, buffer) -> int:
        self.read_calls += 1
        n = min(len(buffer), self._chunk, len(self._data) - self._pos)
        buffer[:n] = self._data[self._pos:self._pos + n]
        self._pos += n
        return n


# ==================== 基础 Fixtures ====================

@pytest.fixture
def raw_header():
    """
    按 ar 格式手工拼接 60 字节条目头 (不经过 EntryHeader)

    Returns:
        make(name, size, mtime=0, uid=0, gid=0, mode=0o100644) -> bytes
    """
    def make(name: str, size, mtime=0, uid=0, gid=0, mode=0o100644) -> bytes:
        mode_text = format(mode, 'o') if isinstance(mode, int) else mode
        text = (
            f"{name:<16}{str(mtime):<12}{str(uid):<6}{str(gid):<6}"
            f"{mode_text:<8}{str(size):<10}`\n"
        )
        data = text.encode('utf-8')
        assert len(data) == 60
        return data

    return make


@pytest.fixture
def hello_archive(raw_header) -> bytes:
    """
    单条目归档: hello.txt / "world"，末尾没有填充字节
    """
    return GLOBAL_MAGIC + raw_header("hello.txt", 5) + b"world"


@pytest.fixture
def gnu_archive(raw_header) -> bytes:
    """
    GNU 格式归档: "//" 扩展名表 + 一个长文件名条目 + 一个短文件名条目
    """
    table = b"liblongname.a/\nanother-long-name.o/\n"
    return (
        GLOBAL_MAGIC
        + raw_header("//", len(table), mtime="", uid="", gid="", mode="")
        + table
        + (b"\n" if len(table) % 2 else b"")
        + raw_header("/0", 3, mtime=1700000000)
        + b"abc"
        + b"\n"
        + raw_header("short.o/", 4)
        + b"data"
    )


@pytest.fixture
def build_archive():
    """
    用 ArchiveWriter 在内存中构建归档

    Returns:
        build(items, long_name_mode='error') -> bytes
        items 为 (ArEntry 或名称, 负载) 列表
    """
    def build(items, long_name_mode='error', name_table=None) -> bytes:
        buffer = io.BytesIO()
        writer = ArchiveWriter(buffer, long_name_mode=long_name_mode)
        if name_table is not None:
            writer.write_name_table(name_table)
        for entry, data in items:
            writer.add_bytes(entry, data)
        writer.finish()
        data = buffer.getvalue()
        writer.close()
        return data

    return build


@pytest.fixture
def trickle():
    """构造 TrickleStream 的工厂"""
    return TrickleStream


@pytest.fixture
def sample_entries():
    """
    一组典型条目与负载 (奇偶长度混合)
    """
    return [
        (ArEntry("a.txt", 1, last_modified=1000), b"A"),
        (ArEntry("empty", 0, last_modified=1001), b""),
        (ArEntry("even.bin", 4, user_id=1000, group_id=100,
                 mode=0o100755, last_modified=1002), b"\x00\x01\x02\x03"),
        (ArEntry("odd.dat", 7, last_modified=1003), b"1234567"),
    ]


@pytest.fixture
def sample_files(tmp_path) -> tuple:
    """
    创建测试文件集

    Returns:
        (目录路径, 文件内容字典)
    """
    files = {
        "hero.txt": b"Hero data content",
        "config.json": b'{"name": "test", "value": 123}',
        "data.bin": bytes(range(256)),
        "odd.txt": b"xyz",
    }

    for name, content in files.items():
        (tmp_path / name).write_bytes(content)

    return tmp_path, files
