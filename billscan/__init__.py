"""Bill scanning and extraction pipeline.

Turns an uploaded photo or scan of a paper bill into a structured record
(bill number, date, totals, customer and payment details, line items)
using Tesseract OCR and ordered regex cascades, with no per-document
templates.
"""
