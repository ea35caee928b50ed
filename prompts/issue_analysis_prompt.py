ISSUE_ANALYSIS_TEMPLATE = """
Analyze this Jira issue and provide insights:

Summary: {summary}
Description: {description}
Labels: {labels}
Priority: {priority}
Status: {status}

Please provide:
1. A brief analysis of the issue
2. Potential concerns or risks
3. Suggestions for resolution
""".strip()
