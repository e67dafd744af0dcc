"""Module entrypoint.

Allows:
    python -m mcp_connection_doctor
"""

from __future__ import annotations

from mcp_connection_doctor.server.doctor_server import main

if __name__ == "__main__":
    main()
