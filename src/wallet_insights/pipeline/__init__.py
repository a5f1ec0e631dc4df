"""
Interpretation pipeline: symbol resolution, swap interpretation, valuation,
order classification, aggregation and the report builders on top of them.
"""
