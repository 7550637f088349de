"""
Hull systems package.
"""
from .hull_job import HullJob, HullPhase, start_concave_hull_job, step_concave_hull_job
from .hull_scheduler import HullScheduler
from .mapping import MappedEntityRegistry, should_add_frontier
from .point_set import PointSetManager, fingerprint, quantize
