"""Fetch, extract, score and query-fit stages of an audit."""
