"""Composable WSGI middleware: request IDs, CORS, recovery, access logs, timeouts."""