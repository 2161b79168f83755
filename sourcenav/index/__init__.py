from .quadtree import SpatialIndex, QuadNode, build_spatial_index
from .height import HeightQuery, select_closest
