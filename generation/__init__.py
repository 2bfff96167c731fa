"""
Question Paper Generation Gateway
generation/

Steps (one request, no retries):
1. Rate Limiter      — admit(client_key) before any backend work
2. Request Builder   — files + PaperConfig → prompt, attachments, schema
3. Generation Client — one chat.completions call
4. Validator         — JSON parse + Schema Contract check
5. Gateway           — runs 1-4, maps every failure to the error taxonomy
"""
