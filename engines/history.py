"""
Sustainability Decision-Support — Rolling History Cache
Append-only, bounded per domain id. Each key has its own lock so analyses
of different domains never contend or interfere. A key's window is fixed
when its first snapshot is recorded (the domain's historyWindow, else the
cache default).
"""
import threading
from collections import deque

MIN_WINDOW = 2
MAX_WINDOW = 50
DEFAULT_WINDOW = 24


def _bounded(window):
    return max(MIN_WINDOW, min(MAX_WINDOW, int(window)))


class HistoryCache:
    def __init__(self, window=DEFAULT_WINDOW):
        self.window = _bounded(window)
        self._series = {}
        self._locks = {}
        self._guard = threading.Lock()

    def _slot(self, domain_id, window=None):
        with self._guard:
            if domain_id not in self._series:
                size = self.window if window is None else _bounded(window)
                self._series[domain_id] = deque(maxlen=size)
                self._locks[domain_id] = threading.Lock()
            return self._series[domain_id], self._locks[domain_id]

    def _existing(self, domain_id):
        with self._guard:
            return self._series.get(domain_id), self._locks.get(domain_id)

    def record(self, domain_id, snapshot, window=None):
        """Append {'overall': x, 'indicators': {name: value}}; oldest entry evicted past the window."""
        series, lock = self._slot(domain_id, window)
        entry = {'overall': snapshot.get('overall'),
                 'indicators': dict(snapshot.get('indicators') or {})}
        with lock:
            series.append(entry)

    def window_of(self, domain_id):
        series, _ = self._existing(domain_id)
        return self.window if series is None else series.maxlen

    def snapshots(self, domain_id):
        series, lock = self._existing(domain_id)
        if series is None:
            return []
        with lock:
            return list(series)

    def previous(self, domain_id):
        values = {}
        for snap in self.snapshots(domain_id):
            for name, v in snap['indicators'].items():
                values.setdefault(name, []).append(v)
        return values

    def overall_series(self, domain_id):
        return [s['overall'] for s in self.snapshots(domain_id) if s['overall'] is not None]

    def clear(self, domain_id=None):
        with self._guard:
            keys = list(self._series) if domain_id is None else [domain_id]
            for k in keys:
                if k in self._series:
                    with self._locks[k]:
                        self._series[k].clear()

    def __len__(self):
        with self._guard:
            return len(self._series)
