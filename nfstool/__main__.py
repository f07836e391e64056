"""
Punto de entrada: python -m nfstool

Delega a la aplicación de nfsplane (misma app que nfsplane.cli.app).
"""

from nfsplane.cli.app import app

if __name__ == "__main__":
    app()
