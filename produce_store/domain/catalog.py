"""
Catalog Domain Models

Categories and subcategories used for storefront navigation.

Author: TM3
Date: 2026-02-11
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class Subcategory(BaseModel):
    id: str
    category_id: str
    name: str
    slug: str
    display_order: int = 0
    is_hidden: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class Category(BaseModel):
    """
    Category domain model

    Subcategories are loaded alongside and kept sorted by display_order.
    """
    id: str
    name: str
    slug: str
    icon: str = "🥭"
    display_order: int = 0
    is_hidden: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    subcategories: List[Subcategory] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def visible_copy(self) -> "Category":
        """Copy with hidden subcategories removed (storefront view)"""
        return self.model_copy(update={
            "subcategories": [s for s in self.subcategories if not s.is_hidden]
        })

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={'subcategories'})
        data['subcategories'] = [s.to_dict() for s in self.subcategories]
        return data


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern="^[a-z0-9-]+$")
    icon: str = "🥭"
    display_order: int = 0
    is_hidden: bool = False


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern="^[a-z0-9-]+$")
    icon: Optional[str] = None
    display_order: Optional[int] = None
    is_hidden: Optional[bool] = None


class SubcategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern="^[a-z0-9-]+$")
    display_order: int = 0
    is_hidden: bool = False


class SubcategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=100, pattern="^[a-z0-9-]+$")
    display_order: Optional[int] = None
    is_hidden: Optional[bool] = None


class SocialLink(BaseModel):
    """Link to one of the store's social profiles, shown in the storefront sidebar"""
    id: str
    platform: str
    url: str
    icon: str
    display_order: int = 0
    is_visible: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class SocialLinkCreate(BaseModel):
    platform: str = Field(..., min_length=1, max_length=50)
    url: str = Field(..., min_length=1, max_length=500, pattern="^https?://")
    icon: Optional[str] = Field(None, max_length=50)
    display_order: int = 0
    is_visible: bool = True


class SocialLinkUpdate(BaseModel):
    platform: Optional[str] = Field(None, min_length=1, max_length=50)
    url: Optional[str] = Field(None, min_length=1, max_length=500, pattern="^https?://")
    icon: Optional[str] = Field(None, max_length=50)
    display_order: Optional[int] = None
    is_visible: Optional[bool] = None
