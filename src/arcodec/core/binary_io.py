#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
二进制 I/O 封装

提供 BinaryWriter 和 BinaryReader 类，封装所有底层流操作，
使上层模块不需要直接操作文件对象。

ar 格式只需要顺序访问，因此两者都只向前移动，不依赖 seek，
可用于管道、socket 等不可定位的流。
"""

from typing import BinaryIO

# 跳过数据时的分块大小
SKIP_CHUNK_SIZE = 64 * 1024


class BinaryWriter:
    """
    二进制写入器

    封装所有底层写操作，并记录从流开始以来写入的字节数。
    上层模块根据 position 判断对齐，无需调用 tell()。
    """

    def __init__(self, file: BinaryIO):
        """
        初始化写入器

        Args:
            file: 可写的二进制流
        """
        self._file = file
        self._position = 0

    @property
    def position(self) -> int:
        """当前写入位置 (从流开始计算)"""
        return self._position

    def write_bytes(self, data: bytes) -> int:
        """
        写入原始字节

        Args:
            data: 要写入的字节

        Returns:
            写入的字节数
        """
        written = self._file.write(data)
        # 部分文件对象 write() 不返回写入长度
        if written is None:
            written = len(data)
        self._position += written
        return written

    def write_text(self, s: str, encoding: str = 'ascii') -> int:
        """写入编码后的字符串"""
        return self.write_bytes(s.encode(encoding))

    def align(self, boundary: int, fill: bytes) -> int:
        """
        填充到指定边界

        Args:
            boundary: 对齐边界 (字节)
            fill: 单字节填充值

        Returns:
            填充的字节数
        """
        remainder = self._position % boundary
        if remainder == 0:
            return 0
        return self.write_bytes(fill * (boundary - remainder))

    def flush(self) -> None:
        """刷新底层流"""
        flush = getattr(self._file, 'flush', None)
        if flush is not None:
            flush()

    def close(self) -> None:
        """关闭底层流"""
        self._file.close()


class BinaryReader:
    """
    二进制读取器

    封装所有底层读操作，记录从流开始以来读取 (或跳过) 的字节数。
    """

    def __init__(self, file: BinaryIO):
        """
        初始化读取器

        Args:
            file: 可读的二进制流
        """
        self._file = file
        self._position = 0

    @property
    def position(self) -> int:
        """当前读取位置 (从流开始计算)"""
        return self._position

    def read_some(self, size: int) -> bytes:
        """
        读取至多 size 字节

        底层流可能一次返回不足的数据 (管道、socket)，
        这里会反复读取直到满足 size 或遇到流结束。

        Args:
            size: 期望读取的字节数

        Returns:
            实际读取的字节，流结束时可能少于 size
        """
        if size <= 0:
            return b''
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._file.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b''.join(chunks)
        self._position += len(data)
        return data

    def read_bytes(self, size: int) -> bytes:
        """
        读取指定字节数

        Args:
            size: 要读取的字节数

        Returns:
            读取的字节

        Raises:
            EOFError: 流中剩余数据不足
        """
        data = self.read_some(size)
        if len(data) < size:
            raise EOFError(
                f"流结束: 期望读取 {size} 字节，实际只有 {len(data)} 字节"
            )
        return data

    def readinto(self, buffer) -> int:
        """
        读取数据到可写缓冲区

        Returns:
            实际读取的字节数，0 表示流结束
        """
        view = memoryview(buffer).cast('B')
        data = self.read_some(len(view))
        view[:len(data)] = data
        return len(data)

    def skip(self, size: int) -> None:
        """
        向前跳过指定字节

        通过读取并丢弃实现，不要求底层流支持 seek。

        Raises:
            EOFError: 跳过过程中遇到流结束
        """
        remaining = size
        while remaining > 0:
            data = self.read_some(min(SKIP_CHUNK_SIZE, remaining))
            if not data:
                raise EOFError(
                    f"流结束: 期望跳过 {size} 字节，实际只跳过 {size - remaining} 字节"
                )
            remaining -= len(data)

    def close(self) -> None:
        """关闭底层流"""
        self._file.close()
