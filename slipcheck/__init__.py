"""Payment slip verification service.

Confirms that an uploaded bank-transfer or deposit slip shows the claimed
transaction: the slip image is normalized, read with Tesseract OCR, fuzzily
matched against the expected transaction id, and scanned for the paid
amount. A bounded-concurrency queue runs this work and records the outcome.
"""
