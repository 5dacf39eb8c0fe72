from collections import deque


class PassHistory:
    def __init__(self, buffer_size=1000):
        self.buffer = deque(maxlen=buffer_size)
        self.total_passes = 0

    def add(self, tolerance, found, eligible_rows):
        self.total_passes += 1
        self.buffer.append({
            'pass': self.total_passes,
            'tolerance': tolerance,
            'found': found,
            'eligible_rows': eligible_rows,
        })

    def clear(self):
        self.buffer.clear()
        self.total_passes = 0

    def as_records(self):
        # Only the most recent `buffer_size` passes are kept
        return list(self.buffer)
