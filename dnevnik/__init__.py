"""Typed async client for the dnevnik.mos.ru school diary API.

Keep package import lightweight; import submodules explicitly where needed.
"""

__version__ = "0.3.0"
__all__ = [
	"client",
	"transport",
	"models",
	"parsers",
	"exceptions",
	"const",
	"utils",
]
