#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
ar 归档读取器

顺序读取 ar 归档，逐个返回条目描述，并把当前条目的负载作为
有界字节流提供给调用方。只向前读取，不要求底层流支持 seek。

支持 GNU/SVR4 ("//" 扩展名表 + "/<偏移>") 和 BSD ("#1/<长度>")
两种长文件名扩展。
"""

import io
import logging
import os
import shutil
from typing import BinaryIO, Iterator, List, Optional, Tuple

from ..core.binary_io import BinaryReader
from ..core.entry import ArEntry
from ..core.schema import (
    EntryHeader,
    GLOBAL_MAGIC,
    ALIGNMENT,
    ENCODING,
    GNU_NAME_TERMINATOR,
    BSD_LONGNAME_PREFIX,
    is_gnu_string_table,
    is_gnu_long_name,
    is_bsd_long_name,
)
from ..core.string_table import NameTable
from ..exceptions import (
    MalformedArchiveError,
    TruncatedArchiveError,
    ProtocolMisuseError,
)
from ..utils import safe_member_name, is_symbol_index

logger = logging.getLogger(__name__)


class EntryStream(io.RawIOBase):
    """
    单个条目的有界只读视图

    读取委托给所属的 ArchiveReader。读取器前进到下一个条目后，
    此视图不再返回数据。
    """

    def __init__(self, reader: 'ArchiveReader', entry: ArEntry, generation: int):
        super().__init__()
        self._reader = reader
        self._generation = generation
        self.entry = entry

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._reader._generation != self._generation:
            return 0
        return self._reader.readinto(buffer)


class ArchiveReader:
    """
    ar 归档读取器

    典型用法:

        >>> with ArchiveReader(open('lib.a', 'rb')) as reader:
        ...     for entry, stream in reader:
        ...         data = stream.read()

    或手动驱动状态机:

        >>> entry = reader.next_entry()
        >>> while entry is not None:
        ...     chunk = reader.read(4096)
        ...     entry = reader.next_entry()

    读取器独占底层流，close() 时关闭它。非线程安全。
    """

    def __init__(self, stream: BinaryIO):
        """
        初始化读取器

        Args:
            stream: 可读的二进制流 (只需支持 read)
        """
        self._reader = BinaryReader(stream)

        # 内部状态
        self._magic_checked = False
        self._exhausted = False
        self._closed = False
        self._current: Optional[ArEntry] = None
        self._entry_end = 0
        self._generation = 0
        self._name_table: Optional[NameTable] = None

    @staticmethod
    def matches(signature: bytes, length: Optional[int] = None) -> bool:
        """
        检查字节前缀是否为 ar 归档

        不读取任何流，可在创建读取器之前调用。

        Args:
            signature: 文件开头的字节
            length: 有效字节数 (默认 len(signature))
        """
        if length is None:
            length = len(signature)
        if length < len(GLOBAL_MAGIC):
            return False
        return bytes(signature[:len(GLOBAL_MAGIC)]) == GLOBAL_MAGIC

    # ==================== 状态机 ====================

    def next_entry(self) -> Optional[ArEntry]:
        """
        前进到下一个条目

        先跳过当前条目未读完的负载，再读取下一个条目头。
        "//" 扩展名表在内部消费，不会返回给调用方。

        Returns:
            下一个条目，归档结束时返回 None

        Raises:
            MalformedArchiveError: 魔法数、尾标或字段无效
            TruncatedArchiveError: 条目头或长文件名不完整
            ProtocolMisuseError: 读取器已关闭
        """
        self._check_open()

        if self._current is not None:
            self._skip_remainder()

        if self._exhausted:
            return None

        if not self._magic_checked:
            self._read_global_header()

        while True:
            # 条目按 2 字节对齐；末尾的填充字节可以省略
            if self._reader.position % ALIGNMENT != 0:
                if not self._reader.read_some(1):
                    return self._end_of_archive()

            data = self._reader.read_some(EntryHeader.SIZE)
            if not data:
                return self._end_of_archive()

            header = EntryHeader.unpack(data)
            logger.debug(
                "读取条目头: name=%r mtime=%s uid=%s gid=%s mode=%o size=%s",
                header.name, header.last_modified, header.user_id,
                header.group_id, header.mode, header.size
            )

            if is_gnu_string_table(header.name):
                self._read_name_table(header.size)
                continue

            return self._open_entry(header)

    def _read_global_header(self) -> None:
        """读取并校验全局魔法数"""
        magic = self._reader.read_some(len(GLOBAL_MAGIC))
        if magic != GLOBAL_MAGIC:
            raise MalformedArchiveError(
                "无效的 ar 魔法数",
                expected=repr(GLOBAL_MAGIC),
                actual=repr(magic)
            )
        self._magic_checked = True

    def _end_of_archive(self) -> None:
        logger.debug("归档结束: 共读取 %d 字节", self._reader.position)
        self._exhausted = True
        return None

    def _read_name_table(self, size: int) -> None:
        """读取 GNU 扩展名表 ("//" 条目)"""
        data = self._reader.read_some(size)
        if len(data) != size:
            raise TruncatedArchiveError(
                "GNU 扩展名表 (//) 不完整", expected=size, actual=len(data)
            )
        self._name_table = NameTable(data)
        logger.debug("载入 GNU 扩展名表: %d 字节", size)

    def _open_entry(self, header: EntryHeader) -> ArEntry:
        """解析名称，记录负载起始位置"""
        name = header.name
        length = header.size

        if name.endswith(GNU_NAME_TERMINATOR):
            name = name[:-1]
        elif is_gnu_long_name(name):
            offset = int(name[1:])
            name = self._lookup_long_name(offset)
            logger.debug("GNU 长文件名: /%d -> %r", offset, name)
        elif is_bsd_long_name(name):
            name_len = int(name[len(BSD_LONGNAME_PREFIX):])
            name = self._read_bsd_long_name(name_len, length)
            # size 字段包含内联名称的长度
            length -= name_len
            logger.debug("BSD 长文件名: %r (%d 字节)", name, name_len)

        entry = ArEntry(
            name=name,
            length=length,
            user_id=header.user_id,
            group_id=header.group_id,
            mode=header.mode,
            last_modified=header.last_modified
        )
        self._current = entry
        self._entry_end = self._reader.position + length
        self._generation += 1
        return entry

    def _lookup_long_name(self, offset: int) -> str:
        if self._name_table is None:
            raise MalformedArchiveError(
                f"无法解析 GNU 长文件名 /{offset}: 之前没有出现 // 记录"
            )
        return self._name_table.get(offset)

    def _read_bsd_long_name(self, name_len: int, size: int) -> str:
        if name_len > size:
            raise MalformedArchiveError(
                f"BSD 长文件名长度 {name_len} 超出条目大小 {size}"
            )
        raw = self._reader.read_some(name_len)
        if len(raw) != name_len:
            raise TruncatedArchiveError(
                "BSD 长文件名不完整", expected=name_len, actual=len(raw)
            )
        try:
            return raw.decode(ENCODING)
        except UnicodeDecodeError:
            raise MalformedArchiveError(f"无法解码的 BSD 长文件名: {raw!r}")

    def _skip_remainder(self) -> None:
        """跳过当前条目未读完的负载"""
        entry = self._current
        remaining = self._entry_end - self._reader.position
        self._current = None
        if remaining > 0:
            try:
                self._reader.skip(remaining)
            except EOFError as e:
                raise TruncatedArchiveError(
                    f"跳过条目 {entry.name!r} 时归档被截断: {e}"
                ) from e

    # ==================== 负载读取 ====================

    def read(self, size: int = -1) -> bytes:
        """
        读取当前条目的负载

        读取不会越过当前条目的边界；负载读完后返回 b''。

        Args:
            size: 最多读取的字节数 (-1 表示读取剩余全部)
        """
        self._check_open()
        if self._current is None:
            return b''

        remaining = self._entry_end - self._reader.position
        if size is None or size < 0 or size > remaining:
            size = remaining
        return self._reader.read_some(size)

    def readinto(self, buffer) -> int:
        """
        读取当前条目的负载到缓冲区

        Returns:
            实际读取的字节数，0 表示条目结束
        """
        self._check_open()
        if self._current is None:
            return 0

        view = memoryview(buffer).cast('B')
        remaining = self._entry_end - self._reader.position
        if remaining <= 0 or len(view) == 0:
            return 0
        return self._reader.readinto(view[:remaining])

    def read_entry_data(self) -> bytes:
        """读取当前条目剩余的全部负载"""
        return self.read()

    def skip_entry(self) -> None:
        """跳过当前条目剩余的负载"""
        self._check_open()
        if self._current is not None:
            self._skip_remainder()

    # ==================== 迭代 ====================

    def iter_entries(self) -> Iterator[Tuple[ArEntry, EntryStream]]:
        """
        迭代所有条目 (生成器模式，内存友好)

        Yields:
            (entry, stream) 元组，stream 仅在迭代到下一个条目之前有效
        """
        while True:
            entry = self.next_entry()
            if entry is None:
                return
            yield entry, EntryStream(self, entry, self._generation)

    def __iter__(self) -> Iterator[Tuple[ArEntry, EntryStream]]:
        return self.iter_entries()

    def extract_all(self, output_dir: str) -> List[str]:
        """
        解包所有条目到指定目录

        GNU 符号索引 ("/" 与 "/SYM64/") 会被跳过。

        Args:
            output_dir: 输出目录路径

        Returns:
            写出的本地文件路径列表

        Raises:
            MalformedArchiveError: 条目名称为空、为 "."/".." 或包含路径分隔符
        """
        os.makedirs(output_dir, exist_ok=True)
        extracted = []

        for entry, stream in self.iter_entries():
            if is_symbol_index(entry.name):
                logger.debug("跳过符号索引: %r", entry.name)
                continue

            local_path = os.path.join(output_dir, safe_member_name(entry.name))
            with open(local_path, 'wb') as f:
                shutil.copyfileobj(stream, f)
            os.utime(local_path, (entry.last_modified, entry.last_modified))
            extracted.append(local_path)

        return extracted

    # ==================== 状态 ====================

    @property
    def current_entry(self) -> Optional[ArEntry]:
        return self._current

    @property
    def bytes_read(self) -> int:
        """从流开始读取 (含跳过) 的字节数"""
        return self._reader.position

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise ProtocolMisuseError("读取器已关闭")

    def close(self) -> None:
        """关闭读取器及底层流 (可重复调用)"""
        if self._closed:
            return
        self._closed = True
        self._current = None
        self._reader.close()

    def __enter__(self) -> 'ArchiveReader':
        return self

    def __exit__(self, *args) -> None:
        self.close()
