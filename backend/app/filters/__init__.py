# Filters package init
"""
Foundation API Backend — Exception Filters
============================================

What:  The global exception filter and the redaction helper it uses before
       sending request context to the external error tracker.
"""
