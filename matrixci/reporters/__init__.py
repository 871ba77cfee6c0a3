from .common import clean_logs
from .text import Text
