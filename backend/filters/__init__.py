"""
Filter compiler: loosely-typed request parameters -> validated FilterSpec -> filter AST.
"""
