# core/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup


@dataclass
class CatalogItem:
    """
    One product as returned by the remote catalog. Images and variants are kept
    in the shape the remote API sent them so they pass through untouched.
    """
    item_id: str
    title: str
    description: str = ""
    images: List[Dict[str, Any]] = field(default_factory=list)
    variants: List[Dict[str, Any]] = field(default_factory=list)
    product_type: str = ""
    raw_id: Any = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CatalogItem":
        raw_id = data.get("id")
        return cls(
            item_id=str(raw_id),
            title=data.get("title") or "",
            description=data.get("body_html") or data.get("body_text") or "",
            images=list(data.get("images") or []),
            variants=list(data.get("variants") or []),
            product_type=str(data.get("product_type") or ""),
            raw_id=raw_id,
        )


@dataclass
class Collection:
    collection_id: Any
    title: str
    handle: str = ""
    member_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Collection":
        members: List[str] = []
        for p in data.get("products") or []:
            pid = p.get("id") if isinstance(p, dict) else p
            if pid is not None:
                members.append(str(pid))
        return cls(
            collection_id=data.get("id"),
            title=data.get("title") or "",
            handle=data.get("handle") or "",
            member_ids=members,
        )

    def summary(self) -> Dict[str, Any]:
        return {"id": self.collection_id, "title": self.title, "handle": self.handle}


@dataclass
class LinkRecord:
    product_id: str
    links: Dict[str, str]
    updated_at: str = ""

    def to_dict(self) -> Dict[str, str]:
        out = dict(self.links)
        out["updatedAt"] = self.updated_at
        return out


@dataclass
class ProductView:
    item: CatalogItem
    category: str
    collections: List[Dict[str, Any]]
    links: LinkRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.item.raw_id if self.item.raw_id is not None else self.item.item_id,
            "title": self.item.title,
            "description": self.item.description,
            "descriptionText": html_to_text(self.item.description),
            "images": self.item.images,
            "variants": self.item.variants,
            "category": self.category,
            "collections": self.collections,
            "platformLinks": self.links.to_dict(),
        }


def html_to_text(html: Optional[str]) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text(" ", strip=True)
