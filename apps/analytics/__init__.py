"""Analytics app package: dashboard figures and revenue reports for administrators."""
