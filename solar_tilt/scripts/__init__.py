"""
Scripts de linea de comandos del optimizador.
"""
