"""core/ -- Kernel shared by every other package: configuration and database engines.

Layer rule: core/ imports only stdlib + third-party libraries. Nothing in
core/ imports from auth/, operations/, or console/.
"""
