"""
Capa de presentacion: tabla de historial y visualizacion Matplotlib.
"""

from .visualization import Visualizer, history_table  # noqa: F401

__all__ = ["Visualizer", "history_table"]


if __name__ == "__main__":
    print("Usa history_table(...) o Visualizer.plot_history(...) para pruebas.")
