"""Par Litho 3D."""

from __future__ import annotations

__author__ = "Paul Robello"
__credits__ = ["Paul Robello"]
__maintainer__ = "Paul Robello"
__email__ = "probello@gmail.com"
__version__ = "0.1.0"
__application_title__ = "Par Litho 3D"
__application_binary__ = "par_litho_3d"
__licence__ = "MIT"
