"""Generator module: page structures from free-text instructions."""

from memberpages.generator.router import router
from memberpages.generator.service import PageGenerator, build_template, get_page_generator

__all__ = ["router", "PageGenerator", "build_template", "get_page_generator"]
