"""
Bucle de cuadros cooperativo: cola de tareas que el anfitrion ejecuta por cuadro.

Equivale a pedir "ejecutame en el proximo cuadro" en un bucle de renderizado.
Las tareas pedidas durante un cuadro se ejecutan en el cuadro siguiente.
"""

from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from typing import Any, Callable, Optional

FrameCallback = Callable[[], Any]


class FrameLoop:
    def __init__(self, logger: Optional[Any] = None) -> None:
        self.logger = logger or logging.getLogger("solar_tilt_opt")
        self._queue: "OrderedDict[int, FrameCallback]" = OrderedDict()
        self._handles = itertools.count(1)
        self.frame_count = 0

    @property
    def pending(self) -> int:
        return len(self._queue)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._handles)
        self._queue[handle] = callback
        return handle

    def cancel_frame(self, handle: Optional[int]) -> bool:
        if handle is None:
            return False
        return self._queue.pop(handle, None) is not None

    def tick(self) -> int:
        """Ejecuta las tareas encoladas antes de este cuadro; devuelve cuantas corrieron."""
        self.frame_count += 1
        handles = list(self._queue.keys())
        ran = 0
        for handle in handles:
            callback = self._queue.pop(handle, None)
            if callback is None:
                # cancelled by an earlier callback of this frame
                continue
            callback()
            ran += 1
        return ran

    def run_until_idle(self, max_frames: int = 1_000_000) -> int:
        """
        Avanza cuadros hasta que la cola queda vacia o se alcanza ``max_frames``.

        Una evaluacion que nunca responde deja la cola vacia: el bucle se
        detiene y el llamador decide que hacer.
        """
        frames = 0
        while self._queue and frames < max_frames:
            self.tick()
            frames += 1
        if self._queue and self.logger:
            self.logger.warning(
                "Frame loop stopped after %d frames with %d pending tasks.", frames, len(self._queue)
            )
        return frames


if __name__ == "__main__":
    loop = FrameLoop()
    loop.request_frame(lambda: print("cuadro 1"))
    print("Cuadros ejecutados:", loop.run_until_idle())
