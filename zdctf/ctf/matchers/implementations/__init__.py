"""Secret matcher implementations"""
