"""Scheduled refresh for UI views.

A view registers its periodic jobs (poll the order queue, tick stat decay,
...) on one RefreshScheduler and ties the scheduler's lifetime to its own,
usually with a `with` block, so every timer stops when the view goes away.

A job that raises is logged and rescheduled; whatever it was refreshing
keeps its last good value until the next tick reconciles it.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


def _cadence(name: str, default: float) -> float:
	v = os.getenv(f"ROLEPLAY_CITY_REFRESH_{name.upper()}")
	return float(v) if v not in (None, "") else default


# seconds between refreshes
DEFAULT_CADENCE = {
	"messages": _cadence("messages", 3),
	"orders": _cadence("orders", 3),
	"documents": _cadence("documents", 5),
	"notifications": _cadence("notifications", 5),
	"alcoholism_decay": _cadence("alcoholism_decay", 3 * 60),
	"hunger_thirst_decay": _cadence("hunger_thirst_decay", 30 * 60),
}


@dataclass
class RefreshTask:
	name: str
	interval: float
	job: Callable[[], object]
	runs: int = 0
	failures: int = 0
	thread: threading.Thread | None = field(default=None, repr=False)


class RefreshScheduler:
	"""
	Usage:
		with RefreshScheduler() as scheduler:
			scheduler.every("orders", client.list_requests)
			...
	"""

	def __init__(self, cadence: dict[str, float] | None = None):
		self.cadence = dict(DEFAULT_CADENCE if cadence is None else cadence)
		self.tasks: dict[str, RefreshTask] = {}
		self._stop = threading.Event()
		self._started = False
		self._lock = threading.Lock()

	def every(self, name: str, job: Callable[[], object], interval: float | None = None) -> RefreshTask:
		"""
		Register `job` to run every `interval` seconds (default: the cadence for `name`).
		"""
		if interval is None:
			if name not in self.cadence:
				raise ValueError(f"no default cadence for {name!r}")
			interval = self.cadence[name]
		if interval <= 0:
			raise ValueError("interval must be positive")

		with self._lock:
			if name in self.tasks:
				raise ValueError(f"task already registered: {name}")
			task = RefreshTask(name=name, interval=interval, job=job)
			self.tasks[name] = task
			if self._started:
				self._launch(task)
		return task

	def run_once(self, task: RefreshTask) -> bool:
		"""
		Run one tick; returns False when the job failed.
		"""
		try:
			task.job()
		except Exception:
			task.failures += 1
			logger.warning("refresh %s failed; keeping previous state", task.name, exc_info=True)
			return False
		finally:
			task.runs += 1
		return True

	def _loop(self, task: RefreshTask):
		while not self._stop.wait(task.interval):
			self.run_once(task)

	def _launch(self, task: RefreshTask):
		task.thread = threading.Thread(target=self._loop, args=(task,), name=f"refresh-{task.name}", daemon=True)
		task.thread.start()

	def start(self):
		with self._lock:
			if self._started:
				return
			self._stop.clear()
			self._started = True
			for task in self.tasks.values():
				self._launch(task)
		logger.debug("refresh scheduler started with %d tasks", len(self.tasks))

	def stop(self, timeout: float | None = 5.0):
		with self._lock:
			if not self._started:
				return
			self._stop.set()
			self._started = False
			threads = [t.thread for t in self.tasks.values() if t.thread is not None]
		for thread in threads:
			thread.join(timeout)
		for task in self.tasks.values():
			task.thread = None
		logger.debug("refresh scheduler stopped")

	@property
	def running(self) -> bool:
		return self._started

	def __enter__(self):
		self.start()
		return self

	def __exit__(self, *exc):
		self.stop()
