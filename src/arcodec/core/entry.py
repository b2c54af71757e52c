#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
归档条目描述

ArEntry 记录单个成员的元数据，与读写方向无关。
"""

import os
import stat
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .schema import DEFAULT_MODE


def _now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class ArEntry:
    """
    归档条目 (不可变)

    相等性约定:
    - ``==`` 比较全部字段，时间戳不同的两个条目不相等。
    - 按名称查找时使用 ``key`` / ``same_entry()``: ar 归档以名称标识成员，
      名称相同即视为同一逻辑条目，即使其他元数据不同。
    """
    name: str
    length: int
    user_id: int = 0
    group_id: int = 0
    mode: int = DEFAULT_MODE
    last_modified: int = field(default_factory=_now)  # 秒 (Unix 时间戳)

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise ValueError(f"条目名称必须是 str: {self.name!r}")
        for attr in ('length', 'user_id', 'group_id', 'mode', 'last_modified'):
            value = getattr(self, attr)
            if value < 0:
                raise ValueError(f"{attr} 不能为负数: {value}")
        # 头部只保存整秒
        object.__setattr__(self, 'last_modified', int(self.last_modified))

    @property
    def key(self) -> str:
        """按名称查找时使用的键"""
        return self.name

    def same_entry(self, other: 'ArEntry') -> bool:
        """是否与另一个条目指向同一逻辑成员 (仅比较名称)"""
        return self.key == other.key

    @property
    def size(self) -> int:
        """负载大小，同 length"""
        return self.length

    @property
    def is_directory(self) -> bool:
        """ar 格式不保存目录"""
        return False

    @property
    def last_modified_date(self) -> datetime:
        """修改时间 (UTC)"""
        return datetime.fromtimestamp(self.last_modified, tz=timezone.utc)

    @classmethod
    def from_path(cls, local_path: str, name: Optional[str] = None) -> 'ArEntry':
        """
        根据本地文件创建条目

        uid/gid 为 0，权限使用默认值，长度与修改时间取自文件。
        非普通文件长度记为 0。

        Args:
            local_path: 本地文件路径
            name: 条目名称 (默认使用文件名)

        Raises:
            FileNotFoundError: 文件不存在
        """
        st = os.stat(local_path)
        if name is None:
            name = os.path.basename(local_path)
        length = st.st_size if stat.S_ISREG(st.st_mode) else 0
        return cls(
            name=name,
            length=length,
            last_modified=int(st.st_mtime)
        )
