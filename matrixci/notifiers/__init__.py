from .console import Console
from .email import Email
from .mock import Mock
from .webhook import Webhook
