"""Live container log forwarding."""
import logging
from typing import Any, Callable, Optional

import eventlet

from hostdash.exceptions import HostDashError

logger = logging.getLogger('hostdash')

class LogStream:
    """
    Forward the follow-mode log stream of one container to one connection.

    The stream handle is kept so that ``close()`` severs the runtime
    connection instead of leaving it attached in the background.
    """

    def __init__(self, sid: str, container_id: str, container_client: Any,
                 emit: Callable[[str, str, Any], None], tail: int = 100):
        self.sid = sid
        self.container_id = container_id
        self.container_client = container_client
        self.tail = tail
        self.closed = False
        self.finished = False
        self._emit = emit
        self._stream = None
        self._thread: Optional[eventlet.greenthread.GreenThread] = None

    def start(self) -> None:
        if self._thread is None:
            self._thread = eventlet.spawn(self._run)

    def close(self) -> None:
        """Detach from the runtime. Safe to call after the stream has ended."""
        if self.closed:
            return
        self.closed = True
        self._close_stream()

    def _push(self, event: str, data: dict) -> None:
        if self.closed:
            return
        try:
            self._emit(self.sid, event, data)
        except Exception as e:
            logger.debug(f"[LOGS] Emit of {event} to {self.sid} failed: {str(e)}")

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.close()
        except Exception as e:
            logger.debug(f"[LOGS] Error closing log stream for {self.container_id}: {str(e)}")

    def _run(self) -> None:
        try:
            self._stream = self.container_client.stream_logs(self.container_id, tail=self.tail)
        except HostDashError as e:
            logger.error(f"[LOGS] Could not attach to logs of {self.container_id}: {e.message}")
            self._push('docker:logs:error', {'containerId': self.container_id, 'message': e.message})
            self.finished = True
            return
        except Exception as e:
            logger.error(f"[LOGS] Could not attach to logs of {self.container_id}: {str(e)}")
            self._push('docker:logs:error', {'containerId': self.container_id,
                                             'message': 'Failed to stream logs'})
            self.finished = True
            return

        # close() may have run while we were attaching
        if self.closed:
            self._close_stream()
            self.finished = True
            return

        logger.info(f"[LOGS] Streaming logs of {self.container_id} to {self.sid}")
        try:
            for chunk in self._stream:
                if self.closed:
                    break
                data = chunk.decode('utf-8', errors='replace') if isinstance(chunk, bytes) else str(chunk)
                self._push('docker:logs', {'containerId': self.container_id, 'data': data})
            else:
                # The container stopped or removed; tell the client the stream is over
                self._push('docker:logs:stopped', {'containerId': self.container_id})
        except Exception as e:
            # Closing the handle from another greenthread interrupts the read
            if not self.closed:
                logger.error(f"[LOGS] Log stream for {self.container_id} failed: {str(e)}")
                self._push('docker:logs:error', {'containerId': self.container_id,
                                                 'message': 'Failed to stream logs'})
        finally:
            self._close_stream()
            self.finished = True
            logger.debug(f"[LOGS] Log stream for {self.container_id} to {self.sid} ended")
