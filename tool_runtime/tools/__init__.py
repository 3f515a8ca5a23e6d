"""
Local Tools Package

All tools in this directory are auto-discovered by registry.py
Each tool should either:
1. Inherit from LocalTool and implement name and run()
2. Use the @tool decorator for simple function-based tools
"""

# Tools are auto-discovered, no explicit imports needed
