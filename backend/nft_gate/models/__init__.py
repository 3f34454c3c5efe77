from nft_gate.models.kv_record import KVRecord
