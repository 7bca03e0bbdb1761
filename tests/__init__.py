"""Test suite for the conference abstract review service.

Unit tests cover assignment, lifecycle, intake, consensus and
notification components; integration tests drive the service and the
HTTP API end to end.  To run the tests, execute `pytest` from the
project root.
"""
