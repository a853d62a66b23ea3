from typing import List, Optional

from pydantic import BaseModel, Field


class ParsedApp(BaseModel):
    name: str
    description: str = ""
    homepage_url: str
    source_code_url: Optional[str] = None
    demo_url: Optional[str] = None
    license: str = "Unknown"
    language: Optional[str] = None
    category: str
    subcategory: Optional[str] = None


class ParsedCategory(BaseModel):
    name: str
    description: str = ""
    subcategory: Optional[str] = None
    apps: List[ParsedApp] = Field(default_factory=list)
