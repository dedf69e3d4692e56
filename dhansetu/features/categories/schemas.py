from typing import List, Optional
from pydantic import BaseModel

class Category(BaseModel):
    id: str
    name: str
    icon: str
    keywords: List[str] = []

class CategorySuggestionResponse(BaseModel):
    category: Optional[str] = None
