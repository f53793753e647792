"""Student Dashboard backend: user, course and enrollment records behind a REST API"""

__version__ = "1.0.0"
