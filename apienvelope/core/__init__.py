"""Core utilities and shared application primitives.

The envelope, the status taxonomy, the request gate and the checks live here.
Apart from the FastAPI integration helpers, modules in this package are
framework-agnostic.
"""


