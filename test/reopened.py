"""
Second source unit for Amazing (see test/declarations.py).
"""
from declarations import Amazing
from thorn import desc, reopen


@reopen(Amazing)
class Amazing:
    @desc("goodbye", "say goodbye")
    def goodbye(self):
        return "Goodbye"
