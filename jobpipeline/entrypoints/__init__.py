"""
Process entry points.

jobpipeline-trigger    -> jobpipeline.entrypoints.trigger:run
jobpipeline-background -> jobpipeline.entrypoints.background:run
"""
