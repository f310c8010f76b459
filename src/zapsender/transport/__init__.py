"""
Chat transport package.

Keep package import side-effects to a minimum: Selenium is only imported
by the WhatsApp Web adapter. Do not import factory/adapters here.
"""
