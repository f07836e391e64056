"""
CLI de nfsplane (Typer).
"""
