#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
GNU 扩展名表

GNU/SVR4 ar 把超过 15 字节的文件名集中存放在名为 "//" 的伪条目中，
每个名称以 "/\\n" 结尾。条目头中的 "/<偏移>" 引用该表中的字节偏移。
"""

from typing import Dict, Iterable, List

from .schema import ENCODING, GNU_NAME_TERMINATOR, NAME_TABLE_TERMINATOR
from ..exceptions import MalformedArchiveError


class NameTable:
    """
    扩展名表

    读取时由 "//" 条目的原始字节构造，按偏移查找名称；
    写入时逐个 add() 名称，记录每个名称的偏移，再用 pack() 得到表内容。
    """

    def __init__(self, data: bytes = b''):
        self._data = bytearray(data)
        self._offsets: Dict[str, int] = {}

    def add(self, name: str) -> int:
        """
        添加名称，返回其偏移

        如果名称已存在，返回现有偏移。

        Raises:
            ValueError: 名称包含换行符
        """
        if name in self._offsets:
            return self._offsets[name]
        if '\n' in name:
            raise ValueError(f"扩展名表中的名称不能包含换行符: {name!r}")

        offset = len(self._data)
        self._data += (name + GNU_NAME_TERMINATOR).encode(ENCODING)
        self._data += NAME_TABLE_TERMINATOR
        self._offsets[name] = offset
        return offset

    def offset_of(self, name: str) -> int:
        """
        获取已添加名称的偏移

        Raises:
            KeyError: 名称未添加
        """
        return self._offsets[name]

    def get(self, offset: int) -> str:
        """
        根据偏移读取名称

        从偏移处扫描到换行符，去掉换行符前的 "/" (如果有)。

        Raises:
            MalformedArchiveError: 偏移越界或找不到换行符
        """
        if offset >= len(self._data):
            raise MalformedArchiveError(
                f"GNU 长文件名偏移越界: {offset} (扩展名表共 {len(self._data)} 字节)"
            )

        end = self._data.find(NAME_TABLE_TERMINATOR, offset)
        if end < 0:
            raise MalformedArchiveError(f"GNU 长文件名未以换行符结尾: 偏移 {offset}")

        if end > offset and self._data[end - 1:end] == GNU_NAME_TERMINATOR.encode(ENCODING):
            end -= 1

        raw = bytes(self._data[offset:end])
        try:
            return raw.decode(ENCODING)
        except UnicodeDecodeError:
            raise MalformedArchiveError(f"无法解码的 GNU 长文件名: {raw!r}")

    def pack(self) -> bytes:
        """表的原始字节"""
        return bytes(self._data)

    def __len__(self) -> int:
        """表的字节数"""
        return len(self._data)

    def __contains__(self, name: str) -> bool:
        return name in self._offsets

    @property
    def names(self) -> List[str]:
        """已添加的名称 (按添加顺序)"""
        return list(self._offsets)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> 'NameTable':
        """由名称列表构建"""
        table = cls()
        for name in names:
            table.add(name)
        return table
