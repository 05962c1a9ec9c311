"""console/ -- Terminal front end for the back office.

A login prompt and a main menu whose entries are gated by the session's
permissions, with the dashboard panel behind one of them.

Layer rule: console/ may import from auth/, operations/ and core/. Nothing
imports from console/ except main.py.
"""
