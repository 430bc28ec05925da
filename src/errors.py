"""
errors.py
---------------------------------------------------------
Exception taxonomy for the land cover pipeline.

None of these are retried: the run works over static files, so every
error is surfaced to the operator and aborts before any output is written.

  PipelineIOError        missing or unreadable input file
  SchemaError            unexpected attributes, labels or CRS on a layer
  GeometryValidityError  geometry still invalid after repair
  AlignmentError         grids whose extents cannot be reconciled
"""


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    stage = ""

    def __init__(self, message, *, stage=""):
        self.message = message
        if stage:
            self.stage = stage
        super().__init__(message)

    def __str__(self):
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class PipelineIOError(PipelineError, OSError):
    stage = "io"

    def __init__(self, message, *, path=None):
        self.path = path
        super().__init__(message)


class SchemaError(PipelineError, ValueError):
    stage = "schema"


class GeometryValidityError(PipelineError, ValueError):
    stage = "geometry"


class AlignmentError(PipelineError, ValueError):
    stage = "alignment"
