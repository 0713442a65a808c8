# relay/__init__.py
