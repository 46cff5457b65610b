import time


class Timer:
    """Paces a loop to a fixed number of ticks per second."""

    def __init__(self, rate=60):
        """
        Parameters
        ----------
        rate : int | float
            Ticks per second.
        """

        if rate <= 0:
            raise ValueError(f"Tick rate must be positive, got {rate=}.")
        self.rate = rate
        self._previous_tick = time.perf_counter()
        self._deadline = self._previous_tick

    def tick(self, rate=None):
        """Block until the next tick is due.

        Deadlines are spaced one period apart regardless of how long the
        caller spent between ticks. After falling more than a whole period
        behind, the schedule restarts from now rather than bursting.

        Parameters
        ----------
        rate : int | float, optional
            Override the rate given in __init__ for this tick only.

        Returns
        -------
        float:
            Seconds since the previous tick() call.
        """

        period = 1 / (rate or self.rate)
        self._deadline += period
        now = time.perf_counter()
        if self._deadline > now:
            time.sleep(self._deadline - now)
            now = time.perf_counter()
        elif now - self._deadline > period:
            self._deadline = now

        dt = now - self._previous_tick
        self._previous_tick = now
        return dt
