"""Core pipeline modules: data model, prompt, extraction, orchestration.

WHY: The core package holds the pure logic of segment identification
and the orchestrator that drives the remote services. Nothing here
knows about HTTP routes or the command line.

HOW: ir.py defines the records, prompt.py renders the model prompt,
extraction.py locates and validates the model's JSON, analyzer.py runs
the pipeline, postprocess.py sorts and inspects segments, timeline.py
renders the review timeline and its summary prompt.
"""
