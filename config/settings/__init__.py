"""Settings package for the ParkHub admin project.

`base.py` holds configuration shared by every environment; `dev.py`,
`prod.py` and `test.py` extend it with environment specific overrides.
"""
