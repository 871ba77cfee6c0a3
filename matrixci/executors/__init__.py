from .docker import Docker
from .mock import Mock
from .shell import Shell
