# HTTP API for the EML decoder
