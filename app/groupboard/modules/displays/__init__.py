"""
TV display module: display URL list and PDF uploads registered as displays.
"""
