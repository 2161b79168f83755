from .cursor import ByteCursor
from .decoder import MeshDecoder, VersionLayout, decode, NAV_MAGIC, MIN_VERSION, MAX_VERSION
