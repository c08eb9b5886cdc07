# Table rendering parameters
ENTITY_DESCRIPTION_WIDTH = 60
