"""
nfstool - adaptadores de host, CLI por rol y salida Rich para nfsplane.
"""
