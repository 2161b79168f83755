from .vector import Vector3
from .polygon import Bounds2D, TriangleInterpolator, point_in_polygon, inverse_bilinear, bilinear_height
