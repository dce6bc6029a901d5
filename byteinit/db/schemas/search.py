from typing import List

from pydantic import BaseModel

from .blogs import BlogCard
from .resources import Resource


class SearchResponse(BaseModel):
    query: str
    blogs: List[BlogCard]
    resources: List[Resource]


class TrendingSearch(BaseModel):
    query: str
    count: int
