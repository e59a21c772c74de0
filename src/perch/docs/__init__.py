"""Documentation — response specs and the synthesized API document.

Response declarations are merged per endpoint at freeze time; the document
is derived once from the frozen controllers and never changes afterwards.
"""
