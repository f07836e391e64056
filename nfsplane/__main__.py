"""
Punto de entrada: python -m nfsplane
"""

from nfsplane.cli.app import main

if __name__ == "__main__":
    main()
