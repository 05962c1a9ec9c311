"""operations/ -- Floor and stock data the back office reports on.

Orders, restaurant tables and inventory levels, plus the dashboard
statistics computed from them. Full CRUD screens for these live outside
this package; only what the dashboard and billing need is here.

Layer rule: operations/ may import from core/. It does NOT import from
auth/ or console/.
"""
