"""
Record Service.

Stores user profile records in a single Redis hash and exposes
create/read/update/delete operations over HTTP.
"""

__version__ = "1.0.0"
