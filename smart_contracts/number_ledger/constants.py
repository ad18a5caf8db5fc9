# Box key = NUMBER_BOX_PREFIX + itob(index)
NUMBER_BOX_PREFIX = b"numbers"
