import threading
import time


class SharedState:
    """
    Singleton class to share the runtime context between the main process
    and the FastAPI routes.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.context = None
                    cls._instance.context_lock = threading.Lock()
                    cls._instance.system_stats = {
                        "start_time": 0,
                    }
        return cls._instance

    def set_context(self, context):
        with self.context_lock:
            self.context = context
        self.system_stats["start_time"] = time.time()

    def get_context(self):
        with self.context_lock:
            return self.context

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)


# Global instance
state = SharedState()
