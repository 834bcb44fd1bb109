"""
列式响应格式化
将记录数组转换为 UDF 协议的 "response-as-a-table" 格式
"""

from typing import Any, Dict, Iterable, List, Mapping


def _is_uniform(values: List[Any]) -> bool:
    """所有值是否为同一个值（类型不同视为不同值，如 1 与 True）"""
    first = values[0]
    return all(type(value) is type(first) and value == first for value in values[1:])


def as_table(items: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    记录数组转列式字典

    每个字段收集为按行顺序排列的数组；若某字段在所有行中取值唯一，
    则折叠为该单一值。

    Args:
        items: 记录序列

    Returns:
        列式字典，例如 [{a: 1, b: 2}, {a: 1, b: 3}] -> {a: 1, b: [2, 3]}
    """
    result: Dict[str, Any] = {}
    for item in items:
        for key, value in item.items():
            result.setdefault(key, []).append(value)

    for key, values in result.items():
        if _is_uniform(values):
            result[key] = values[0]
    return result


class ColumnarFormatter:
    """列式格式化器（无状态）"""

    def format(self, items: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        return as_table(items)

    __call__ = format
