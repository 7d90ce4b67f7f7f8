"""标签实体"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

from domain.common.exceptions import DomainValidationException


TAG_MAX_LENGTH = 50


@dataclass
class Tag:
    id: Optional[int]
    name: str


def normalize_tag_names(names: Optional[Iterable[str]]) -> List[str]:
    """去除空白与重复标签，保持原有顺序"""
    result: List[str] = []
    seen = set()
    for raw in names or []:
        name = (raw or "").strip()
        if not name:
            continue
        if len(name) > TAG_MAX_LENGTH:
            raise DomainValidationException(
                f"Tag cannot exceed {TAG_MAX_LENGTH} characters", field="tags"
            )
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(name)
    return result
