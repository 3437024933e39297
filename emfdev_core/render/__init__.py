from .svg import SvgDocument, render_svg

__all__ = ["SvgDocument", "render_svg"]
