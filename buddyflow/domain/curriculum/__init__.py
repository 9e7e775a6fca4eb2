"""
Curriculum bounded context - Domain layer.

Templates are authored and edited elsewhere; this package only models the
shape the snapshot engine reads. Templates are mutable and are not
validated on construction, because reporting every defect at once is the
snapshot engine's job.
"""
