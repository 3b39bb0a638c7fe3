from pynamu.models.models import Page

__all__ = ["Page"]
