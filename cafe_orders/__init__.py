"""
                Cafe Orders

Backend for a table-service cafe: menu management, live orders
and completed-order history, on JSON files or a SQL database.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
