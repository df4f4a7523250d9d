"""
provisio: provision developer command-line tools into reproducible shell profiles.
"""

__version__ = "0.1.0"
