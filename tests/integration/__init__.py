"""Integration tests for components working together as a system.

No mocks for core functionality - tests real interactions.

Coverage:
    - Content stream interpretation on generated PDF documents
    - Font decoding through ToUnicode maps and embedded TrueType programs
    - Form XObjects, page ranges and the horizontal window
    - Document assembly from PDF pages

Slower than unit tests but provides higher confidence.
"""
