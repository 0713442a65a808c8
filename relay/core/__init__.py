# relay/core/__init__.py
