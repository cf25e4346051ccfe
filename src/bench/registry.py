"""
bench/registry.py — 只读后端注册表

name → backend 的映射, 迭代顺序固定为名称字典序, 保证相同输入下
报告逐字节一致. 插件发现由环境完成, 注册表只接收结果.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterator, List


class BackendRegistry(Mapping):
    """Args:
        backends: name → backend (实现 describe / list_algorithms /
            can_service / solve)
    """

    def __init__(self, backends: Dict[str, Any]) -> None:
        for name, backend in backends.items():
            missing = [m for m in ("describe", "list_algorithms",
                                   "can_service", "solve")
                       if not callable(getattr(backend, m, None))]
            if missing:
                raise TypeError(f"backend '{name}' lacks {missing}")
        self._backends = dict(backends)

    def __getitem__(self, name: str):
        return self._backends[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._backends))

    def __len__(self) -> int:
        return len(self._backends)

    def names(self) -> List[str]:
        return list(self)

    def __repr__(self) -> str:
        return f"BackendRegistry({self.names()})"
